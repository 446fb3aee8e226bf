# storefront/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type


def payment_retry(*exception_types: type[BaseException]):
    """Bounded retry for calls to the payment provider.

    Only the given (transient) exception types are retried; the last one is
    re-raised when attempts run out.
    """
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(exception_types),
    )
