"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally use real credentials or services
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("INFERENCE_API_TOKEN", "")
os.environ.setdefault("ANTHROPIC_API_KEY", "")
os.environ.setdefault("ENHANCEMENT_ENABLED", "false")
os.environ.setdefault("LEDGER_RPC_URL", "http://ledger.test")
os.environ.setdefault("LEDGER_OWNER_ADDRESS", "0x00000000000000000000000000000000000000aa")
