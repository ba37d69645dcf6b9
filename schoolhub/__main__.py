import os

import uvicorn

from .app import app


def main() -> None:
    reload_enabled = os.getenv("BACKEND_RELOAD", "false").lower() == "true"
    backend_host = os.getenv("BACKEND_HOST", "127.0.0.1")
    backend_port = int(os.getenv("BACKEND_PORT", "8000"))
    try:
        if reload_enabled:
            uvicorn.run("schoolhub.app:app", host=backend_host, port=backend_port, reload=True)
        else:
            uvicorn.run(app, host=backend_host, port=backend_port)
    except OSError as e:
        if "address already in use" in str(e).lower():
            print(f"[Startup Error] Port {backend_port} is already in use. Set BACKEND_PORT to another port.")
        raise


if __name__ == "__main__":
    main()
