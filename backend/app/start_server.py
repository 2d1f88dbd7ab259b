"""
Startup script for the widget audit backend.
On Windows this MUST be used instead of 'uvicorn main:app'.
"""

import sys
import os
import asyncio

# Force unbuffered output
os.environ['PYTHONUNBUFFERED'] = '1'

# Set Windows event loop policy FIRST, before any imports
if sys.platform == 'win32':
    print(" Detected Windows - Setting ProactorEventLoop policy...", flush=True)
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())


def main():
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    print("\n Starting Widget Audit Server...", flush=True)
    print(f" Server will run on: http://localhost:{port}", flush=True)
    print(f" API Docs available at: http://localhost:{port}/docs", flush=True)
    print("\n" + "="*50, flush=True)

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        reload=False,  # logs stay in this terminal
        log_level="info",
        access_log=True
    )


if __name__ == "__main__":
    main()
