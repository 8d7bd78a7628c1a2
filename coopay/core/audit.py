from datetime import datetime

from coopay.core import config


def write_audit_log(user_name: str, user_role: str, action: str, details: str = ""):
    """Append one line to this month's audit log."""
    logs_dir = config.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    month_str = datetime.now().strftime("%Y_%m")
    log_file = logs_dir / f"audit_{month_str}.log"
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(f"{ts} | {user_role} | {user_name} | {action} | {details}\n")
