"""
mbean-spine - cached key property lists for management object names.

Parses the ``key=value,...`` suffix of object names such as
``java.lang:type=GarbageCollector,name=G1`` into ordered, read-only
mappings, and caches the result per name so a collector's scrape loop
parses each name once.

    >>> from mbeanspine import MBeanPropertyCache, ObjectName
    >>> cache = MBeanPropertyCache()
    >>> dict(cache.get_key_property_list(ObjectName("d:b=2,a=1")))
    {'b': '2', 'a': '1'}
"""

__version__ = "0.1.0"

from mbeanspine.cache import CacheStats, MBeanPropertyCache
from mbeanspine.object_name import Identity, IdentityHolder, ObjectInstance, ObjectName
from mbeanspine.parser import ScanResult, parse_key_property_list, scan_key_properties

__all__ = [
    "CacheStats",
    "Identity",
    "IdentityHolder",
    "MBeanPropertyCache",
    "ObjectInstance",
    "ObjectName",
    "ScanResult",
    "parse_key_property_list",
    "scan_key_properties",
    "__version__",
]
