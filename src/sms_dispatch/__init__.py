from __future__ import annotations

from dotenv import load_dotenv

# Local development keeps M360 credentials in a .env file at the project root.
load_dotenv()

__version__ = "0.1.0"
