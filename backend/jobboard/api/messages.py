import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ..database import get_db
from ..models.job import Job
from ..models.message import Message
from ..models.user import User
from ..utils.dependencies import current_user_id, get_current_user
from ..utils.error_handlers import get_error_message
from ..utils.validation import validate_integer_field, validate_string_field
from .payloads import to_iso, message_public

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Messages"])


class MessageCreate(BaseModel):
    receiverId: int | str | None = None
    content: str | None = None
    jobId: int | str | None = None


def _message_relations(q):
    return q.options(joinedload(Message.sender), joinedload(Message.receiver), joinedload(Message.job))


def _mark_read(db: Session, *, reader_id: int, other_user_id: int) -> int:
    updated = (
        db.query(Message)
        .filter(
            Message.sender_id == other_user_id,
            Message.receiver_id == reader_id,
            Message.is_read.is_(False),
        )
        .update({Message.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


@router.post("/messages", status_code=201)
def send_message(payload: MessageCreate, db: Session = Depends(get_db), user=Depends(get_current_user)):
    if payload.receiverId in (None, "") or not (payload.content or "").strip():
        raise HTTPException(status_code=400, detail=get_error_message("message_fields_required"))

    receiver_id = validate_integer_field(payload.receiverId, "Receiver ID", min_value=1)
    content = validate_string_field(payload.content, "Content", max_length=10000)
    job_id = validate_integer_field(payload.jobId, "Job ID", min_value=1, required=False) if payload.jobId not in (None, "") else None

    receiver = db.query(User).filter(User.id == receiver_id).first()
    if not receiver:
        raise HTTPException(status_code=404, detail=get_error_message("receiver_not_found"))

    # Messaging is recruiter <-> candidate only.
    if receiver.role == user.get("role"):
        raise HTTPException(status_code=400, detail=get_error_message("same_role_message"))

    if job_id is not None and not db.query(Job.id).filter(Job.id == job_id).first():
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))

    message = Message(
        sender_id=current_user_id(user),
        receiver_id=receiver_id,
        job_id=job_id,
        content=content,
        is_read=False,
    )
    db.add(message)
    db.commit()

    saved = _message_relations(db.query(Message).filter(Message.id == message.id)).one()
    return {"message": "Message sent successfully", "data": message_public(saved)}


@router.get("/conversations")
def list_conversations(db: Session = Depends(get_db), user=Depends(get_current_user)):
    me = current_user_id(user)
    rows = (
        db.query(Message)
        .filter(or_(Message.sender_id == me, Message.receiver_id == me))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .all()
    )

    # Rows are newest first, so the first row seen per counterpart is the latest.
    conversations: dict[int, dict] = {}
    for m in rows:
        other_id = m.receiver_id if m.sender_id == me else m.sender_id
        entry = conversations.get(other_id)
        if entry is None:
            entry = conversations[other_id] = {
                "userId": other_id,
                "lastMessage": m.content,
                "lastMessageTime": to_iso(m.created_at),
                "unreadCount": 0,
            }
        if m.receiver_id == me and not m.is_read:
            entry["unreadCount"] += 1

    if conversations:
        users = {u.id: u for u in db.query(User).filter(User.id.in_(list(conversations))).all()}
        for other_id, entry in conversations.items():
            other = users.get(other_id)
            entry["name"] = other.name if other else None
            entry["email"] = other.email if other else None
            entry["role"] = other.role if other else None

    return list(conversations.values())


@router.get("/conversations/{other_user_id:int}")
def get_conversation(other_user_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    me = current_user_id(user)
    rows = (
        _message_relations(db.query(Message))
        .filter(
            or_(
                and_(Message.sender_id == me, Message.receiver_id == other_user_id),
                and_(Message.sender_id == other_user_id, Message.receiver_id == me),
            )
        )
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
    # Payload reflects the state before this read.
    conversation = [message_public(m) for m in rows]

    if rows:
        _mark_read(db, reader_id=me, other_user_id=other_user_id)
    return conversation


@router.put("/conversations/{other_user_id:int}/read")
def mark_conversation_read(other_user_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    updated = _mark_read(db, reader_id=current_user_id(user), other_user_id=other_user_id)
    logger.debug("Marked %d messages read", updated)
    return {"message": "Messages marked as read"}
