DBMS_DRIVER_NAME = "dbms_driver_name"
DBMS_DRIVER_VERSION = "dbms_driver_version"
DBMS_PRODUCT_NAME = "dbms_product_name"
DBMS_PRODUCT_VERSION = "dbms_product_version"

UNKNOWN = "unknown"
