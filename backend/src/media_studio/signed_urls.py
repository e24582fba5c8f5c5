from __future__ import annotations

from typing import Dict

from .media_host import MediaHost


def signed_url_set(host: MediaHost, public_id: str) -> Dict[str, str]:
    """Background-removal and enhancement variants of one uploaded image."""
    return {
        "original": host.url(public_id, type="upload"),
        "standard": host.signed_url(public_id, effect="background_removal", format="png"),
        "fine_edges": host.signed_url(
            public_id, effect="background_removal:fineedges_y", format="png"
        ),
        "with_shadow": host.signed_url(
            public_id,
            transformation=[{"effect": "background_removal"}, {"effect": "dropshadow"}],
            format="png",
        ),
        "enhanced": host.signed_url(public_id, effect="viesus_correct", quality="auto:best"),
    }
