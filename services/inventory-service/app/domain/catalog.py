"""Static catalog of services the inventory can hold accounts for."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Service:
    service_id: str
    name: str
    price: int


SERVICES: tuple[Service, ...] = (
    Service("netflix", "Netflix", 150),
    Service("spotify", "Spotify Premium", 400),
    Service("primevideo", "Prime Video", 100),
    Service("showmax_1m", "Showmax Pro (1 Month)", 100),
    Service("showmax_3m", "Showmax Pro (3 Months)", 250),
    Service("showmax_6m", "Showmax Pro (6 Months)", 500),
    Service("showmax_1y", "Showmax Pro (1 Year)", 900),
    Service("youtubepremium", "YouTube Premium", 100),
    Service("applemusic", "Apple Music", 250),
    Service("canva", "Canva Pro", 300),
    Service("grammarly", "Grammarly Premium", 250),
    Service("urbanvpn", "Urban VPN", 100),
    Service("nordvpn", "NordVPN", 350),
    Service("xbox", "Xbox Game Pass", 400),
    Service("playstation", "PlayStation Plus", 400),
    Service("deezer", "Deezer Premium", 200),
    Service("tidal", "Tidal HiFi", 250),
    Service("soundcloud", "SoundCloud Go+", 150),
    Service("audible", "Audible Premium Plus", 400),
    Service("skillshare", "Skillshare Premium", 350),
    Service("masterclass", "MasterClass", 600),
    Service("duolingo", "Duolingo Super", 150),
    Service("notion", "Notion Plus", 200),
    Service("microsoft365", "Microsoft 365", 500),
    Service("googleone", "Google One", 250),
    Service("adobecc", "Adobe Creative Cloud", 700),
    Service("expressvpn", "ExpressVPN", 400),
    Service("surfshark", "Surfshark VPN", 200),
    Service("cyberghost", "CyberGhost VPN", 250),
    Service("ipvanish", "IPVanish", 200),
    Service("protonvpn", "ProtonVPN Plus", 300),
    Service("windscribe", "Windscribe Pro", 150),
    Service("eaplay", "EA Play", 250),
    Service("ubisoft", "Ubisoft+", 300),
    Service("geforcenow", "Nvidia GeForce Now", 350),
    Service("peacock_tv", "Peacock TV", 50),
)

_BY_ID = {service.service_id: service for service in SERVICES}


def get_catalog() -> tuple[Service, ...]:
    return SERVICES


def find_service(service_id: str) -> Service | None:
    return _BY_ID.get(service_id)


def display_name(service_id: str) -> str:
    """Catalog name for ``service_id``, falling back to the raw id for unlisted services."""
    service = _BY_ID.get(service_id)
    return service.name if service else service_id
