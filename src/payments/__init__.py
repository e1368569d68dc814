"""
Payment Gateway Module

Razorpay integration used by the booking flow: order creation through the
Orders API (amounts in paise) and HMAC-SHA256 verification of checkout
signatures.
"""

from .gateway import RazorpayGateway

__all__ = ["RazorpayGateway"]
