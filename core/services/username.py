import re
import unicodedata
from typing import Callable, List, Optional, Tuple

USERNAME_MIN = 3
USERNAME_MAX = 30

_ALLOWED = re.compile(r"^[a-zA-Z0-9._]+$")
_STARTS_WITH_LETTER = re.compile(r"^[a-zA-Z]")
_BAD_ENDING = re.compile(r"[._]$")
_CONSECUTIVE = re.compile(r"[._]{2,}")


def validate_username(username: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Returns (valid, error message)."""
    if not username or len(username) < USERNAME_MIN:
        return False, f"Username deve ter no mínimo {USERNAME_MIN} caracteres"
    if len(username) > USERNAME_MAX:
        return False, f"Username deve ter no máximo {USERNAME_MAX} caracteres"
    if not _ALLOWED.match(username):
        return False, "Username pode conter apenas letras, números, pontos e underscores"
    if not _STARTS_WITH_LETTER.match(username):
        return False, "Username deve começar com uma letra"
    if _BAD_ENDING.search(username):
        return False, "Username não pode terminar com ponto ou underscore"
    if _CONSECUTIVE.search(username):
        return False, "Username não pode ter pontos ou underscores consecutivos"
    return True, None


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


def generate_username_suggestions(name: str) -> List[str]:
    clean = re.sub(r"[^a-z\s]", "", _strip_accents(name or "").lower()).strip()
    parts = clean.split()
    if not parts:
        return []

    first, last = parts[0], parts[-1]
    initials = "".join(p[0] for p in parts)

    suggestions = []
    if first != last:
        suggestions.append(f"{first}.{last}")
        suggestions.append(f"{first}{last}")
    if len(initials) > 1:
        suggestions.append(f"{first}.{initials[1:]}")
        suggestions.append(f"{initials[:-1]}.{last}")
    suggestions.append(first)

    # dict keeps first-seen order
    return list(dict.fromkeys(suggestions))[:5]


def pick_available_usernames(
    name: str,
    is_available: Callable[[str], bool],
    limit: int = 3,
) -> List[str]:
    """First free variant of each suggestion (``base``, then ``base2``..``base99``)."""
    found: List[str] = []
    for base in generate_username_suggestions(name):
        if is_available(base):
            found.append(base)
        else:
            for i in range(2, 100):
                candidate = f"{base}{i}"
                if is_available(candidate):
                    found.append(candidate)
                    break
        if len(found) >= limit:
            break
    return found[:limit]
