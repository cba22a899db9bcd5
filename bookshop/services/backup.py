from __future__ import annotations

import zipfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from bookshop.config import settings


def make_backup_zip(
    db_path: Optional[str] = None,
    export_dir: Optional[str] = None,
    backup_dir: Optional[str] = None,
) -> str:
    """
    Делает ZIP: база + PDF чеков (если есть).
    Возвращает путь к zip.
    """
    db_file = Path(db_path or settings.db_path)
    receipts_dir = Path(export_dir or settings.export_dir)
    backups_dir = Path(backup_dir or settings.backup_dir)
    backups_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    zip_path = backups_dir / f"backup_{ts}.zip"

    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as z:
        if db_file.exists():
            z.write(db_file, arcname=f"db/{db_file.name}")

        if receipts_dir.exists():
            for p in sorted(receipts_dir.glob("*.pdf")):
                z.write(p, arcname=f"receipts/{p.name}")

    return str(zip_path)
