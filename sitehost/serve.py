import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "sitehost.main:create_app",
        factory=True,
        host=os.getenv("SITEHOST_HOST", "127.0.0.1"),
        port=int(os.getenv("SITEHOST_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
