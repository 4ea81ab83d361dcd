"""
Daily digest - digest turn plus markdown/JSON extraction
"""

from lumo.agents.digest.parsing import build_digest_payload, extract_machine_tail, extract_section_bullets
from lumo.agents.digest.service import DigestService, digest_prompt

__all__ = [
    "DigestService",
    "build_digest_payload",
    "digest_prompt",
    "extract_machine_tail",
    "extract_section_bullets",
]
