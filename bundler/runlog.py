"""Console progress log kept for the duration of one build run."""

from __future__ import annotations

from typing import List, Literal

LogLevel = Literal["info", "success", "warn", "error"]

PREFIXES: dict[str, str] = {
    "info": "ℹ️",
    "success": "✅",
    "warn": "⚠️",
    "error": "❌",
}


class RunLog:
    """Record every progress line and echo it unless running quietly."""

    def __init__(self, *, verbose: bool = True) -> None:
        self.verbose = verbose
        self.lines: List[str] = []

    def log(self, message: str, level: LogLevel = "info") -> None:
        line = f"{PREFIXES[level]} {message}"
        self.lines.append(line)
        if self.verbose:
            print(line)

    def info(self, message: str) -> None:
        self.log(message, "info")

    def success(self, message: str) -> None:
        self.log(message, "success")

    def warn(self, message: str) -> None:
        self.log(message, "warn")

    def error(self, message: str) -> None:
        self.log(message, "error")
