__title__ = 'StreamTier'
__version__ = '1.3.0'
__author__ = 'StreamTier developers'
__description__ = 'Manifest parsing and quality-tier URL rewriting for DASH/HLS streams'
