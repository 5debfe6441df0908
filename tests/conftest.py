from __future__ import annotations

import os

# Settings() is built at import time of recipeshare.app.config
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")
