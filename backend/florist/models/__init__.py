from .sales import Sale
from .settings import CardCompanySetting
from .reservations import Reservation
from .push import PushSubscription

__all__ = [
    'Sale',
    'CardCompanySetting',
    'Reservation',
    'PushSubscription',
]
