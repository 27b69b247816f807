"""メッセージ定義の読み込みアダプタ群."""

from .base_adapter import BaseSpecificationReader
from .yaml_adapter import YamlDefinitionAdapter

__all__ = [
    "BaseSpecificationReader",
    "YamlDefinitionAdapter",
]
