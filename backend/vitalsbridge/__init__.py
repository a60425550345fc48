"""Serial sensor telemetry bridge: live events and a durable session log."""
