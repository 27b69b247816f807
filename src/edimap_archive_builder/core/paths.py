"""Archive entry naming.

The well-known entry paths are shared with the mapping engine that loads the
archive, so they must not change.
"""

from __future__ import annotations

from .model import Description

MAPPING_MODEL_LIST_FILE = "META-INF/mapping-models.lst"
MAPPING_MODEL_URN_FILE = "META-INF/mapping-models.urn"
INTERCHANGE_PROPERTIES_FILE = "META-INF/interchange.properties"

WELL_KNOWN_ENTRIES = (
    MAPPING_MODEL_LIST_FILE,
    MAPPING_MODEL_URN_FILE,
    INTERCHANGE_PROPERTIES_FILE,
)


def path_prefix(urn: str) -> str:
    """URN からアーカイブ内のディレクトリ接頭辞を作る.

    Examples:
        >>> path_prefix("urn:example.model")
        'urn/example_model'
    """
    return urn.replace(".", "_").replace(":", "/")


def message_entry_path(prefix: str, message_id: str) -> str:
    """Entry path of a message's mapping model document."""
    return f"{prefix}/{message_id}.xml"


def model_list_line(entry_path: str, description: Description) -> str:
    """One line of the mapping model list file.

    Examples:
        >>> model_list_line("urn/example_model/ORDERS.xml", Description("Order", "1.0"))
        '/urn/example_model/ORDERS.xml!Order!1.0\\n'
    """
    return f"/{entry_path}!{description.name}!{description.version}\n"
