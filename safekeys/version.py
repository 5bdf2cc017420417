"""SafeKeys Meta information.
   SafeKeys derives keys from a master password and seals password vaults
   into versioned, tamper-evident envelopes.
"""
__title__ = 'safekeys'
__description__ = (
   'SafeKeys derives keys from a master password and seals password '
   'vaults into versioned, tamper-evident envelopes.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 SafeKeys developers'
__author__ = 'SafeKeys developers'
__author_email__ = 'dev@safekeys.invalid'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/safekeys/safekeys'
