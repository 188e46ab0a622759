"""Vigil Meta information.
   Vigil is a dead-man's switch that reveals secrets if they stop being refreshed.
"""
__title__ = 'vigil'
__description__ = (
   'Vigil is a dead-man\'s switch that reveals secrets to a set of '
   'beneficiaries unless their owner keeps refreshing them.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/vigil'
