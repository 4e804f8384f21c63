"""
Request status rollup

The overall status of a request follows from how many of the requested units
have been assigned across its line items.
"""

PENDING = 'pending'
PARTIALLY_FULFILLED = 'partially_fulfilled'
FULFILLED = 'fulfilled'


def rollup_status(total_requested, total_fulfilled):
    """
    0 fulfilled -> pending, fewer than requested -> partially_fulfilled,
    otherwise fulfilled
    """
    if total_fulfilled <= 0:
        return PENDING
    if total_fulfilled < total_requested:
        return PARTIALLY_FULFILLED
    return FULFILLED


def fulfillment_percentage(total_requested, total_fulfilled):
    if total_requested <= 0:
        return 0
    return round(total_fulfilled / total_requested * 100)
