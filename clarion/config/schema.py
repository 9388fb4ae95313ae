from pydantic import BaseModel, Field
from typing import List, Dict

class AppConfig(BaseModel):
    api_url: str = "http://localhost:2077" # Clarion backend (file system, filter evaluator, agents)
    request_timeout: float = Field(default=30.0, gt=0)
    # Delay before candidate globs in the context preview are sent to the evaluator
    preview_debounce_ms: int = Field(default=300, ge=0)
    token_encoding: str = "cl100k_base"
    exclude_presets: Dict[str, List[str]] = Field(default_factory=lambda: {
        "Node.js": ["node_modules/**", "dist/**", "build/**", "*.log"],
        "Python": ["**/__pycache__/**", "*.venv/**", "venv/**", ".idea/**"],
        "Go": ["vendor/**", "bin/**"],
    })
