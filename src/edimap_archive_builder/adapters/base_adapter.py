"""仕様リーダー（基底クラス）.

メッセージ定義の入手元（YAML/JSON 定義ファイル、UN/EDIFACT ディレクトリなど）を
共通インターフェースで扱うための抽象基底クラスを定義します。
"""

from abc import ABC, abstractmethod

from edimap_archive_builder.core.model import Edimap


class BaseSpecificationReader(ABC):
    """Reader interface consumed by the archive builder.

    Within one conversion every call to message_ids() must return the same ids,
    and mapping_model() must return a fresh tree on each call (the builder
    rewrites tags in place).
    """

    @abstractmethod
    def message_ids(self) -> list[str]:
        """Message ids in first-seen order, without duplicates.

        Raises:
            UpstreamReadError: The message set could not be read
        """
        ...

    @abstractmethod
    def mapping_model(self, message_id: str) -> Edimap:
        """Build the mapping model of one message.

        Raises:
            UpstreamReadError: Unknown message or malformed definition
        """
        ...

    @abstractmethod
    def interchange_properties(self) -> dict[str, str]:
        """Interchange level configuration."""
        ...
