from recex.config.receipt_config import ReceiptConfig, KnownMerchant

__all__ = ['ReceiptConfig', 'KnownMerchant']
