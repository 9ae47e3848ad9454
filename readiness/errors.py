"""
Error taxonomy for the fulfillment flow.

Every adapter translates its provider's exceptions into one of these, so route
handlers and the orchestrator only ever see FulfillmentError subclasses.
"""


class FulfillmentError(Exception):
    """Base class. `status_code` is the HTTP status used when surfaced to a client."""
    status_code = 500

    def __init__(self, message='', **context):
        self.message = message or self.__class__.__name__
        self.context = context
        super().__init__(self.message)


class ValidationError(FulfillmentError):
    """Missing or malformed input."""
    status_code = 400


class NotFound(FulfillmentError):
    """A referenced entity does not exist."""
    status_code = 404


class InvalidSignature(FulfillmentError):
    """Webhook payload failed authentication — never processed."""
    status_code = 400


class UpstreamError(FulfillmentError):
    """Payment, email or storage provider call failed."""
    status_code = 500


class StorageError(UpstreamError):
    pass


class DeliveryError(UpstreamError):
    pass


class RenderError(FulfillmentError):
    """The report document could not be produced."""
    status_code = 500


class PersistenceError(FulfillmentError):
    """A record store read or write failed."""
    status_code = 500


class DuplicateRecord(PersistenceError):
    """A unique key (checkout session id, purchase attempt) already exists."""
