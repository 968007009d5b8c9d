import json
from datetime import datetime
from pathlib import Path

from app.config import get_settings
from app.logger import logger


def get_log_file() -> Path:
    return Path(get_settings().LOG_DIR) / "user_actions.log"


def log_action(action: str, user_id: str, details: dict = None, ip: str = None):
    """Логирует действия пользователей в файл"""
    log_entry = {
        "timestamp": datetime.now().isoformat(),
        "action": action,
        "user_id": user_id,
        "ip": ip,
        "details": details or {}
    }

    log_file = get_log_file()
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(log_entry, ensure_ascii=False) + "\n")
    except OSError as e:
        logger.error(f"Failed to write user action log: {e}")


def get_logs(limit: int = 100) -> list:
    """Возвращает последние логи"""
    log_file = get_log_file()
    if limit <= 0 or not log_file.exists():
        return []

    with open(log_file, "r", encoding="utf-8") as f:
        lines = f.readlines()

    logs = []
    for line in lines[-limit:]:
        try:
            logs.append(json.loads(line))
        except json.JSONDecodeError:
            logger.warning(f"Skipping malformed user action log line: {line.strip()}")

    return logs
