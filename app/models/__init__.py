from .user.user import User, UserRole
from .requests.travel_request import TravelRequest, RequestStatus
from .packages.tour_package import TourPackage
from .bookings.booking import Booking, BookingStatus
from .activity.activity_log import ActivityLog, ActivityAction
