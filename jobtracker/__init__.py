"""Job Tracker decision core.

Decides, for each incoming job listing, whether it duplicates something the
owner already tracks, which labels the owner's rules apply, and how desirable
it is according to the owner's scoring preferences.
"""

__version__ = "0.1.0"
