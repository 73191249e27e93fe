import json
import re


_FENCED_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_first_json_object(text: str) -> dict:
    """
    Best-effort extraction of a JSON object from a model response.

    Models often wrap the object in a ```json fence or in prose; both are tolerated.
    Raises ValueError when no object can be decoded.
    """
    raw = (text or "").strip()
    if not raw:
        raise ValueError("Empty AI response")

    fenced = _FENCED_RE.search(raw)
    if fenced:
        raw = fenced.group(1).strip()

    try:
        obj = json.loads(raw)
        if isinstance(obj, dict):
            return obj
    except json.JSONDecodeError:
        pass

    m = _JSON_OBJECT_RE.search(raw)
    if not m:
        raise ValueError("No JSON object found in AI response")
    obj = json.loads(m.group(0))
    if not isinstance(obj, dict):
        raise ValueError("AI response JSON is not an object")
    return obj
