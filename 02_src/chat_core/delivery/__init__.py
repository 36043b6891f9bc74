"""Delivery module."""

from .broker import DeliveryBroker, IDeliveryBroker

__all__ = ["DeliveryBroker", "IDeliveryBroker"]
