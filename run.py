"""
run.py

Simple entry point to run the FastAPI application with Uvicorn:
    python run.py

No business logic should be written here.
"""

import uvicorn

from doc_extractor.config import HOST, PORT


if __name__ == "__main__":
    uvicorn.run(
        "doc_extractor.main:app",
        host=HOST,
        port=PORT,
    )
