# Fleet Booking Engine: database models
# Import all models here for SQLAlchemy discovery

from app.models.reference import Branch, VehicleCategory   # noqa
from app.models.vehicle import Vehicle                     # noqa
from app.models.booking import Booking                     # noqa
from app.models.issue import Issue, IssueDeletion          # noqa
from app.models.activity_log import VehicleActivityLog     # noqa
from app.models.mileage_log import MileageLog              # noqa
