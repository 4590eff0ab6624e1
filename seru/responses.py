from fastapi.encoders import jsonable_encoder


def success(data=None, message: str | None = None) -> dict:
    """Standard success envelope: ``{"success": true, "data": ..., "message": ...}``."""
    body = {"success": True}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if message:
        body["message"] = message
    return body
