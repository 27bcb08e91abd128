"""Calendar persistence and synchronization engine."""

from typing import TYPE_CHECKING

from agenda.codec import CodecRegistry, DateFallback, ICSCodec, VCSCodec

if TYPE_CHECKING:
    from agenda.config import AgendaConfig

__version__ = "0.4.0"


def setup_codec_registry(config: "AgendaConfig | None" = None) -> CodecRegistry:
    """Set up codec registry with the ICS and VCS codecs.

    Malformed-start policies come from ``config`` when given.
    """
    ics_fallback = config.ics_date_fallback if config else DateFallback.SKIP
    vcs_fallback = config.vcs_date_fallback if config else DateFallback.SKIP

    registry = CodecRegistry()
    registry.register(ICSCodec(date_fallback=ics_fallback), [".ics", ".ical"])
    registry.register(VCSCodec(date_fallback=vcs_fallback), [".vcs"])
    return registry


__all__ = ["setup_codec_registry", "__version__"]
