from .event import event
from .registration import registration
