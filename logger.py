import pandas as pd
import os
from datetime import datetime

# One row per submission attempt, read back by the staff dashboard.
LOG_FILE = "orders_log.csv"
COLUMNS = ["Timestamp", "Guardian", "Student", "School", "Total", "Status"]


def log_submission(order, status, log_file=None):
    """Append one order attempt (Success / Failed) to the CSV log."""
    log_file = log_file or LOG_FILE

    row = {
        "Timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "Guardian": order.guardian_name,
        "Student": order.student_name,
        "School": order.school,
        "Total": f"{order.total:.2f}",
        "Status": status
    }

    # header only on the first write
    write_header = not os.path.isfile(log_file)
    pd.DataFrame([row], columns=COLUMNS).to_csv(log_file, mode='a', header=write_header, index=False)


def load_logs(log_file=None):
    log_file = log_file or LOG_FILE
    if not os.path.exists(log_file):
        return pd.DataFrame(columns=COLUMNS)
    try:
        return pd.read_csv(log_file)
    except (pd.errors.EmptyDataError, pd.errors.ParserError):
        return pd.DataFrame(columns=COLUMNS)
