import os
import sqlite3


class Database:
    """Local SQLite access for the application log store."""

    @staticmethod
    def connect(path):
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        return sqlite3.connect(path)
