from plantpal.realtime.acks import Ack
from plantpal.realtime.gateway import PresenceGateway

__all__ = ["Ack", "PresenceGateway"]
