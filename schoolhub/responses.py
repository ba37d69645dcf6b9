def success(data=None, message: str | None = None, **extra) -> dict:
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    body.update(extra)
    return body


def failure(message: str, error: str | None = None) -> dict:
    body: dict = {"success": False, "message": message}
    if error:
        body["error"] = error
    return body
