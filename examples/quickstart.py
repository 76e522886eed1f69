"""aptabase-nomad Quick Start: minimal example to get events flowing."""

import logging

from aptabase_nomad import AptabaseConfig, Client, PlatformDeviceContext, TrackingMode

logging.basicConfig(level=logging.INFO)

# 1. Configure from the app key (region picks the host)
config = AptabaseConfig.from_app_key("A-DEV-000", tracking_mode=TrackingMode.DEBUG)

# 2. Create one long-lived client and pass it to the code that tracks events
client = Client(
    config,
    device=PlatformDeviceContext(
        app_version="1.0.0",
        app_build_number="1",
        tracking_mode=config.tracking_mode,
    ),
)

# 3. Track events; these return immediately
client.track("app_started")
client.track("item_created", {"kind": "note", "length": 120, "pinned": False})

# 4. Optionally push now instead of waiting for the next interval
delivered = client.flush().result(timeout=10.0)
print(f"Delivered: {delivered}, still pending: {client.dispatcher.pending}")

# 5. Shutdown (flushes remaining events)
client.shutdown()
