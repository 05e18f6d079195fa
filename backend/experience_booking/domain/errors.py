class BookingError(Exception):
    """Base class for failures reported to the caller with a readable message."""


class InvalidRequestError(BookingError):
    pass


class InvalidSlotError(BookingError):
    pass


class InsufficientCapacityError(BookingError):
    pass


class ReservationConflictError(BookingError):
    """Another request changed the slot's booked count between read and write."""


class PersistenceFailureError(BookingError):
    """The booking row could not be written after capacity was reserved."""


class ExperienceNotFoundError(BookingError):
    pass
