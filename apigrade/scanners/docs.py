from __future__ import annotations

from collections import Counter

from ..core.models import Fact
from ..ingest.models import ApiModel


class DocumentationScanner:
    """Extracts facts about operation and API-level documentation."""

    name = "documentation"

    def scan(self, api: ApiModel) -> list[Fact]:
        if not api.detailed:
            return []

        facts: list[Fact] = []
        for endpoint in api.endpoints:
            location = endpoint.location
            undocumented = [p.name for p in endpoint.parameters if not p.description]
            facts.append(Fact(key="docs.missing_summary",
                              value=not endpoint.summary and not endpoint.description,
                              source=self.name, location=location))
            facts.append(Fact(key="docs.missing_operation_id", value=endpoint.operation_id is None,
                              source=self.name, location=location))
            facts.append(Fact(key="docs.undocumented_parameters", value=bool(undocumented),
                              source=self.name, location=location,
                              field=", ".join(undocumented) or None))

        contact = dict(api.contact)
        ids = Counter(e.operation_id for e in api.endpoints if e.operation_id)
        duplicates = sorted(op_id for op_id, count in ids.items() if count > 1)

        facts.append(Fact(key="docs.missing_api_description", value=not api.description.strip(),
                          source=self.name, field="info.description"))
        facts.append(Fact(key="docs.missing_contact",
                          value=not (contact.get("email") or contact.get("url")),
                          source=self.name, field="info.contact"))
        facts.append(Fact(key="docs.duplicate_operation_id", value=bool(duplicates),
                          source=self.name, field=", ".join(duplicates) or None))
        return facts
