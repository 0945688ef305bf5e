from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Type

from pydantic import BaseModel

@dataclass(frozen=True)
class ToolMeta:
    id: str
    name: str
    category: str
    version: str
    description: str

class ToolBase(Protocol):
    """
    Tool contract.

    Tools declare an `InputModel` (Pydantic) for typed inputs and expose:
      - default_inputs(): starting values for a form
      - run_batch(inputs): headless calculation + calc package exports
      - run(inputs): interactive entry point (may launch a Qt window)
    """
    meta: ToolMeta
    InputModel: Optional[Type[BaseModel]]

    def default_inputs(self) -> Dict[str, Any]:
        ...

    def run_batch(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def run(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        ...
