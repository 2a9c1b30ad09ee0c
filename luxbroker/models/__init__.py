from .broker import BrokerTier, Broker, BrokerNotification
from .seller import Seller
from .commission import Commission, ReferralClick

__all__ = [
    'BrokerTier', 'Broker', 'BrokerNotification',
    'Seller', 'Commission', 'ReferralClick'
]
