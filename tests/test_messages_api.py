def _register(client, *, email: str, role: str, name: str = "Test User"):
    r = client.post(
        "/auth/register",
        json={"email": email, "password": "Testpass123!", "role": role, "name": name},
    )
    assert r.status_code == 201, r.text
    token = r.json()["access_token"]
    return {"id": r.json()["user"]["id"], "headers": {"Authorization": f"Bearer {token}"}}


def _send(client, headers, receiver_id, content, job_id=None):
    body = {"receiverId": receiver_id, "content": content}
    if job_id is not None:
        body["jobId"] = job_id
    return client.post("/messages", headers=headers, json=body)


def test_send_message_between_roles(client, recruiter, candidate):
    job = client.post(
        "/jobs",
        headers=recruiter["headers"],
        json={"title": "QA", "description": "Testing", "company": "Acme", "location": "Remote"},
    ).json()["job"]

    r = _send(client, recruiter["headers"], candidate["id"], "  Hi there  ", job_id=job["id"])
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["content"] == "Hi there"
    assert data["isRead"] is False
    assert data["sender"]["id"] == recruiter["id"]
    assert data["receiver"]["role"] == "candidate"
    assert data["job"] == {"id": job["id"], "title": "QA", "company": "Acme"}


def test_send_message_rejects_same_role(client, candidate):
    other = _register(client, email="cand2@example.com", role="candidate")
    r = _send(client, candidate["headers"], other["id"], "hello")
    assert r.status_code == 400
    assert r.json()["error"] == "Cannot message users with the same role"


def test_send_message_validation(client, recruiter, candidate):
    assert _send(client, recruiter["headers"], candidate["id"], "   ").status_code == 400
    assert _send(client, recruiter["headers"], None, "hi").status_code == 400

    r = _send(client, recruiter["headers"], 9999, "hi")
    assert r.status_code == 404
    assert r.json()["error"] == "Receiver not found"

    r = _send(client, recruiter["headers"], candidate["id"], "hi", job_id=9999)
    assert r.status_code == 404


def test_conversations_and_read_tracking(client, recruiter, candidate):
    _send(client, recruiter["headers"], candidate["id"], "first")
    _send(client, recruiter["headers"], candidate["id"], "second")
    _send(client, candidate["headers"], recruiter["id"], "reply")

    r = client.get("/conversations", headers=candidate["headers"])
    assert r.status_code == 200, r.text
    convs = r.json()
    assert len(convs) == 1
    assert convs[0]["userId"] == recruiter["id"]
    assert convs[0]["name"] == "Rita Recruiter"
    assert convs[0]["role"] == "recruiter"
    assert convs[0]["lastMessage"] == "reply"
    assert convs[0]["unreadCount"] == 2

    thread = client.get(f"/conversations/{recruiter['id']}", headers=candidate["headers"])
    assert thread.status_code == 200, thread.text
    assert [m["content"] for m in thread.json()] == ["first", "second", "reply"]

    # Opening the thread marked the recruiter's messages as read.
    convs = client.get("/conversations", headers=candidate["headers"]).json()
    assert convs[0]["unreadCount"] == 0

    # The candidate's reply is still unread on the recruiter's side.
    convs = client.get("/conversations", headers=recruiter["headers"]).json()
    assert convs[0]["unreadCount"] == 1
    r = client.put(f"/conversations/{candidate['id']}/read", headers=recruiter["headers"])
    assert r.status_code == 200
    assert client.get("/conversations", headers=recruiter["headers"]).json()[0]["unreadCount"] == 0


def test_conversations_sorted_newest_first(client, recruiter, candidate):
    other = _register(client, email="cand2@example.com", role="candidate", name="Second")
    _send(client, recruiter["headers"], candidate["id"], "to first")
    _send(client, recruiter["headers"], other["id"], "to second")

    convs = client.get("/conversations", headers=recruiter["headers"]).json()
    assert [c["userId"] for c in convs] == [other["id"], candidate["id"]]


def test_message_survives_job_deletion(client, recruiter, candidate):
    job = client.post(
        "/jobs",
        headers=recruiter["headers"],
        json={"title": "QA", "description": "Testing", "company": "Acme", "location": "Remote"},
    ).json()["job"]
    _send(client, recruiter["headers"], candidate["id"], "about the job", job_id=job["id"])

    assert client.delete(f"/jobs/{job['id']}", headers=recruiter["headers"]).status_code == 200

    thread = client.get(f"/conversations/{recruiter['id']}", headers=candidate["headers"]).json()
    assert thread[0]["content"] == "about the job"
    assert thread[0]["jobId"] is None
    assert thread[0]["job"] is None
