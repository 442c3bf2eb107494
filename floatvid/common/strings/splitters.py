from typing import List

def csv_to_list(v: str | List[str] | None) -> List[str]:
    if v is None:
        return []
    if isinstance(v, (list, tuple, set)):
        return [str(s).strip() for s in v if s and str(s).strip()]
    return [s.strip() for s in str(v).split(",") if s.strip()]


def csv_to_lower_list(v: str | List[str] | None) -> List[str]:
    """Same as csv_to_list, lower-cased. Codec and extension lists compare case-insensitively."""
    return [s.lower() for s in csv_to_list(v)]
