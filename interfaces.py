import logging

from scapy.all import IFACES, get_if_addr, get_if_list

from models import Interface

logger = logging.getLogger(__name__)


def _usable_ip(ip: str) -> bool:
    return bool(ip) and ip not in ("0.0.0.0", "127.0.0.1") and not ip.startswith("169.254.")


def _addresses(iface) -> list[str]:
    """Collect IPv4 and IPv6 addresses from a scapy interface entry."""
    addrs = []
    ips = getattr(iface, "ips", None) or {}
    for family in (4, 6):
        addrs.extend(str(a) for a in ips.get(family, []))
    ip = getattr(iface, "ip", "")
    if ip and ip not in addrs:
        addrs.insert(0, ip)
    return addrs


def list_interfaces() -> list[Interface]:
    """Return the interfaces scapy can capture on."""
    result = []
    try:
        for name, iface in IFACES.items():
            result.append(Interface(
                name=getattr(iface, "name", "") or str(name),
                description=getattr(iface, "description", "") or "",
                addresses=_addresses(iface),
            ))
    except Exception as e:
        logger.warning(f"Could not enumerate scapy interface table: {e}")

    if result:
        return result

    for name in get_if_list():
        try:
            ip = get_if_addr(name)
        except Exception:
            ip = ""
        # get_if_addr reports "0.0.0.0" for interfaces without an IPv4 address
        result.append(Interface(name=name, addresses=[ip] if ip and ip != "0.0.0.0" else []))
    return result


def get_default_interface() -> str:
    """Auto-detect the active capture interface.

    Returns the first interface with a routable IPv4 address or raises
    RuntimeError.
    """
    for iface in list_interfaces():
        if any(_usable_ip(a) for a in iface.addresses if ":" not in a):
            logger.info(f"Detected default interface {iface.name}")
            return iface.name

    raise RuntimeError("Could not detect a usable network interface")
