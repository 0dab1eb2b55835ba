"""Client IP extraction for requests arriving through proxies or CDNs."""
from starlette.requests import Request

FALLBACK_IP = "0.0.0.0"


def client_ip(request: Request) -> str:
    """Best-effort originating address.

    Order: Cloudflare's CF-Connecting-IP, the first X-Forwarded-For entry,
    X-Real-IP, then the socket peer.
    """
    headers = request.headers

    ip = headers.get("cf-connecting-ip", "").strip()
    if ip:
        return ip

    forwarded_for = headers.get("x-forwarded-for", "")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    ip = headers.get("x-real-ip", "").strip()
    if ip:
        return ip

    if request.client and request.client.host:
        return request.client.host
    return FALLBACK_IP
