from __future__ import annotations
import os
from pydantic import BaseModel

_DATA_DIR = os.getenv("DATA_DIR", "./data")

class Settings(BaseModel):
    app_name: str = "vitalsbridge"
    serial_port: str | None = os.getenv("SERIAL_PORT")  # e.g. /dev/ttyUSB0, COM4
    baud_rate: int = int(os.getenv("BAUD_RATE", "115200"))
    data_dir: str = _DATA_DIR
    log_file: str = os.getenv("SESSION_LOG", os.path.join(_DATA_DIR, "logs.json"))
    static_dir: str | None = os.getenv("STATIC_DIR")
    queue_len: int = int(os.getenv("BROADCAST_QUEUE_LEN", "1024"))
    send_timeout: float = float(os.getenv("WS_SEND_TIMEOUT", "2.0"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
