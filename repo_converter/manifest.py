"""
React project manifest written at the end of the Angular -> React pipeline.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"

REACT_PACKAGE_JSON: dict[str, Any] = {
    "name": "converted-react-app",
    "version": "1.0.0",
    "private": True,
    "dependencies": {
        "react": "^18.2.0",
        "react-dom": "^18.2.0",
        "react-scripts": "5.0.1",
        "@types/react": "^18.2.0",
        "@types/react-dom": "^18.2.0",
        "typescript": "^4.9.5",
    },
    "scripts": {
        "start": "react-app start",
        "build": "react-app build",
        "test": "react-app test",
        "eject": "react-app eject",
    },
    "eslintConfig": {
        "extends": [
            "react-app",
            "react-app/jest",
        ],
    },
    "browserslist": {
        "production": [
            ">0.2%",
            "not dead",
            "not op_mini all",
        ],
        "development": [
            "last 1 chrome version",
            "last 1 firefox version",
            "last 1 safari version",
        ],
    },
}


def react_package_json() -> dict[str, Any]:
    """A fresh copy of the default manifest."""
    return copy.deepcopy(REACT_PACKAGE_JSON)


def write_react_package_json(output_root: str | Path) -> Path:
    path = Path(output_root) / MANIFEST_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(react_package_json(), indent=2), encoding="utf-8")
    logger.info("React package.json written: %s", path)
    return path
