from typing import List

from poster_core.packaging.models import GeneratedPosterFields

TAG_SEPARATOR = " · "


def join_tags(tags: List[str]) -> str:
    return TAG_SEPARATOR.join(tags)


def compose_share_text(poster: GeneratedPosterFields, share_core: str, footer: str) -> str:
    """
    Wraps the generated share paragraph with the title line, tag line and footer.
    """
    sections = [
        f"🎬 {poster.title}",
        share_core.strip(),
        f"🏷️ {join_tags(poster.tags)}",
        footer,
    ]
    return "\n\n".join(section for section in sections if section)
