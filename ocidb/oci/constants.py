"""Numeric constants from the OCI headers (``oci.h``, ``ocidfn.h``, ``orl.h``)."""

# modes
OCI_DEFAULT = 0x00000000
OCI_THREADED = 0x00000001
OCI_OBJECT = 0x00000002

# status codes
OCI_SUCCESS = 0
OCI_SUCCESS_WITH_INFO = 1
OCI_NO_DATA = 100
OCI_ERROR = -1
OCI_INVALID_HANDLE = -2
OCI_NEED_DATA = 99
OCI_STILL_EXECUTING = -3123
OCI_CONTINUE = -24200

# handle types
OCI_HTYPE_ENV = 1
OCI_HTYPE_ERROR = 2
OCI_HTYPE_SVCCTX = 3
OCI_HTYPE_STMT = 4
OCI_HTYPE_BIND = 5
OCI_HTYPE_DEFINE = 6
OCI_HTYPE_DESCRIBE = 7
OCI_HTYPE_SERVER = 8
OCI_HTYPE_SESSION = 9
OCI_HTYPE_TRANS = 10

# descriptor types
OCI_DTYPE_LOB = 50
OCI_DTYPE_PARAM = 53
OCI_DTYPE_FILE = 56
OCI_DTYPE_INTERVAL_DS = 63

# attributes
OCI_ATTR_DATA_SIZE = 1
OCI_ATTR_DATA_TYPE = 2
OCI_ATTR_DISP_SIZE = 3
OCI_ATTR_NAME = 4
OCI_ATTR_PRECISION = 5
OCI_ATTR_SCALE = 6
OCI_ATTR_IS_NULL = 7
OCI_ATTR_SERVER = 6
OCI_ATTR_SESSION = 7
OCI_ATTR_TRANS = 8
OCI_ATTR_ROW_COUNT = 9
OCI_ATTR_PREFETCH_ROWS = 11
OCI_ATTR_PARAM_COUNT = 18
OCI_ATTR_USERNAME = 22
OCI_ATTR_PASSWORD = 23
OCI_ATTR_STMT_TYPE = 24
OCI_ATTR_INTERNAL_NAME = 25
OCI_ATTR_EXTERNAL_NAME = 26
OCI_ATTR_XID = 27
OCI_ATTR_CHARSET_ID = 31
OCI_ATTR_CHARSET_FORM = 32
OCI_ATTR_MAXDATA_SIZE = 33
OCI_ATTR_PARSE_ERROR_OFFSET = 129
OCI_ATTR_NCHARSET_ID = 262
OCI_ATTR_ENV_CHARSET_ID = OCI_ATTR_CHARSET_ID
OCI_ATTR_ENV_NCHARSET_ID = OCI_ATTR_NCHARSET_ID
OCI_ATTR_CHAR_SIZE = 286

# credentials
OCI_CRED_RDBMS = 1
OCI_CRED_EXT = 2

# session begin modes
OCI_SYSDBA = 0x00000002
OCI_SYSOPER = 0x00000004

# statement syntax, execution and fetch modes
OCI_NTV_SYNTAX = 1
OCI_DESCRIBE_ONLY = 0x00000010
OCI_COMMIT_ON_SUCCESS = 0x00000020
OCI_PARSE_ONLY = 0x00000100
OCI_FETCH_NEXT = 0x00000002
OCI_STRLS_CACHE_DELETE = 0x00000010

# statement types
OCI_STMT_UNKNOWN = 0
OCI_STMT_SELECT = 1
OCI_STMT_UPDATE = 2
OCI_STMT_DELETE = 3
OCI_STMT_INSERT = 4
OCI_STMT_CREATE = 5
OCI_STMT_DROP = 6
OCI_STMT_ALTER = 7
OCI_STMT_BEGIN = 8
OCI_STMT_DECLARE = 9
OCI_STMT_CALL = 10
OCI_STMT_MERGE = 16

# transactions
OCI_TRANS_NEW = 0x00000001
OCI_TRANS_TWOPHASE = 0x01000000
XIDDATASIZE = 128
MAXGTRIDSIZE = 64
MAXBQUALSIZE = 64

# external data types
SQLT_CHR = 1
SQLT_NUM = 2
SQLT_INT = 3
SQLT_FLT = 4
SQLT_STR = 5
SQLT_VNU = 6
SQLT_LNG = 8
SQLT_VCS = 9
SQLT_RID = 11
SQLT_DAT = 12
SQLT_BFLOAT = 21
SQLT_BDOUBLE = 22
SQLT_BIN = 23
SQLT_LBI = 24
SQLT_UIN = 68
SQLT_LVC = 94
SQLT_LVB = 95
SQLT_AFC = 96
SQLT_AVC = 97
SQLT_IBFLOAT = 100
SQLT_IBDOUBLE = 101
SQLT_RDD = 104
SQLT_CLOB = 112
SQLT_BLOB = 113
SQLT_BFILE = 114
SQLT_RSET = 116
SQLT_ODT = 156
SQLT_DATE = 184
SQLT_TIMESTAMP = 187
SQLT_TIMESTAMP_TZ = 188
SQLT_INTERVAL_YM = 189
SQLT_INTERVAL_DS = 190
SQLT_TIMESTAMP_LTZ = 232

# character set forms
SQLCS_IMPLICIT = 1
SQLCS_NCHAR = 2

# indicators
OCI_IND_NOTNULL = 0
OCI_IND_NULL = -1

# numbers
OCI_NUMBER_SIZE = 22
OCI_NUMBER_UNSIGNED = 0
OCI_NUMBER_SIGNED = 2

# LOBs
OCI_TEMP_BLOB = 1
OCI_TEMP_CLOB = 2
OCI_DURATION_SESSION = 10
OCI_ONE_PIECE = 0
OCI_FIRST_PIECE = 1
OCI_NEXT_PIECE = 2
OCI_LAST_PIECE = 3
OCI_FILE_READONLY = 1
OCI_LOB_READONLY = 1
OCI_LOB_READWRITE = 2

# NLS
OCI_NLS_MAXBUFSZ = 100
OCI_NLS_CS_ORA_TO_IANA = 1
OCI_NLS_CHARSET_MAXBYTESZ = 91
OCI_NLS_CHARSET_FIXEDWIDTH = 93

OCI_ERROR_MAXMSG_SIZE = 3072
