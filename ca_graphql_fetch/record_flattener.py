"""
Record Flattener — Turns one nested search result into a flat record.

A CollectiveAccess search result looks like this:
    {
      "id": "42", "idno": "2019.1.7", "table": "ca_objects",
      "bundles": [
        {
          "name": "Title", "code": "ca_objects.preferred_labels.name",
          "dataType": "Text",
          "values": [{"value": "Blue vase", "locale": "en_US"}]
        },
        ...
      ]
    }

and is flattened to:
    {"id": "42", "idno": "2019.1.7", "table": "ca_objects",
     "preferred_labels.name": "Blue vase", ...}

Rules:
  - id, idno and table are always copied as-is.
  - The key is the bundle code (or name if there is no code) with the
    leading "ca_objects." removed. Other tables keep their prefix.
  - Values that are null or "" are dropped; dataType and locale are ignored.
  - No surviving values: the bundle is left out.
    One value: stored as a scalar. Several: stored as a list in source order.
    Downstream consumers rely on this scalar/list split.
"""

from typing import Any, Dict, List

from .settings import DEFAULT_SETTINGS


class RecordFlattener:
    """Flattens CollectiveAccess search results.

    Attributes:
        prefix: Bundle key prefix to strip (default "ca_objects.").
    """

    def __init__(self, prefix: str = DEFAULT_SETTINGS["TABLE"] + "."):
        self.prefix = prefix

    def flatten(self, record: Dict[str, Any]) -> Dict[str, Any]:
        flat = {
            "id": record.get("id"),
            "idno": record.get("idno"),
            "table": record.get("table"),
        }

        for bundle in record.get("bundles") or []:
            values = self._collect_values(bundle)
            if not values:
                continue

            flat[self.key_for(bundle)] = values[0] if len(values) == 1 else values

        return flat

    def key_for(self, bundle: Dict[str, Any]) -> str:
        code = bundle.get("code")
        if code is None:
            code = bundle.get("name")
        if code is None:
            code = ""
        if self.prefix and code.startswith(self.prefix):
            return code[len(self.prefix):]
        return code

    @staticmethod
    def _collect_values(bundle: Dict[str, Any]) -> List[Any]:
        values = []
        for entry in bundle.get("values") or []:
            value = entry.get("value")
            if value is not None and value != "":
                values.append(value)
        return values
