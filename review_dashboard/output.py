import json
from pathlib import Path
from typing import Optional

from review_dashboard.utils import safe_filename, ensure_outputs_dir


def write_result(result: dict, name: str, stamp: str, out_dir: Optional[Path] = None) -> str:
    out = ensure_outputs_dir(out_dir)
    path = out / f"{safe_filename(name)}-{safe_filename(stamp)}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, default=str, ensure_ascii=False)
    return str(path)
