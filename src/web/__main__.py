import os

import uvicorn


if __name__ == "__main__":
    uvicorn.run(
        "src.web.main:app",
        host=os.getenv("DELIVERY_HOST", "127.0.0.1"),
        port=int(os.getenv("DELIVERY_PORT", "8000")),
    )
