from dataclasses import dataclass


@dataclass(frozen=True)
class NamedString:
    name: str
    sequence: str
