"""
blobaudit: last-access-time audit and cold tiering for Azure Blob containers.

Scans a container, checks each blob for the x-ms-last-access-time header,
and moves blobs without it to the Cold access tier.
"""

__version__ = "0.1.0"
