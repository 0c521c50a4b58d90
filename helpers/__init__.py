"""
Helper modules for myst-nodes.
"""

from .networking import DEFAULT_EGRESS_SERVICES, ProxyEgressResult, detect_egress_ip, dial_out_proxy_url
from .unified_logger import get_core_logger, get_logger, get_node_logger, log_stage

__all__ = [
    'get_logger',
    'get_node_logger',
    'get_core_logger',
    'log_stage',
    'detect_egress_ip',
    'dial_out_proxy_url',
    'ProxyEgressResult',
    'DEFAULT_EGRESS_SERVICES',
]
