"""Model provider integrations."""

from kcl_design.integrations.republic_client import RepublicGateway, build_gateway

__all__ = ["RepublicGateway", "build_gateway"]
