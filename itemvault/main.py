from __future__ import annotations

import logging
import os

import uvicorn

from itemvault.app import create_app
from itemvault.app.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = create_app(settings)


if __name__ == '__main__':
    uvicorn.run(app, host=os.getenv('HOST', '127.0.0.1'), port=int(os.getenv('PORT', 8000)))
