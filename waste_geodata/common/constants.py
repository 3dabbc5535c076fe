"""Application constants."""

USER_AGENT = "waste-geodata/0.3 (+municipal ingestion; contact: configured-email)"

GEOGRAPHIC_CRS = "EPSG:4326"
UTM_28N_CRS = "EPSG:32628"
UTM_27N_CRS = "EPSG:32627"
LAMBERT_SENEGAL_CRS = "EPSG:2147"
FALLBACK_CRS = UTM_28N_CRS

PROJ_DEFINITIONS = {
    GEOGRAPHIC_CRS: "+proj=longlat +datum=WGS84 +no_defs",
    UTM_28N_CRS: "+proj=utm +zone=28 +datum=WGS84 +units=m +no_defs",
    UTM_27N_CRS: "+proj=utm +zone=27 +datum=WGS84 +units=m +no_defs",
    LAMBERT_SENEGAL_CRS: (
        "+proj=lcc +lat_1=13.5 +lat_2=15.5 +lat_0=14.5 +lon_0=-14 "
        "+x_0=400000 +y_0=300000 +ellps=clrk80 "
        "+towgs84=-263,6,431,0,0,0,0 +units=m +no_defs"
    ),
}

# (x_min, x_max, y_min, y_max), inclusive, in source units.
DETECTION_RANGES = {
    GEOGRAPHIC_CRS: (-180.0, 180.0, -90.0, 90.0),
    UTM_28N_CRS: (200000.0, 800000.0, 1400000.0, 1900000.0),
    UTM_27N_CRS: (400000.0, 900000.0, 1400000.0, 1900000.0),
    LAMBERT_SENEGAL_CRS: (200000.0, 600000.0, 0.0, 500000.0),
}

DEFAULT_REGION_BBOX = {
    "min_lon": -17.8,
    "max_lon": -11.2,
    "min_lat": 12.0,
    "max_lat": 16.8,
}

COORDINATE_PRECISION = 6

ENTITY_KINDS = (
    "collection_points",
    "urban_furniture",
    "sweeping_routes",
)
INPUT_FORMATS = ("geojson", "csv")
SINK_TYPES = ("file", "rest")

EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "level",
    "run_id",
    "stage",
    "entity",
    "event",
    "status",
    "feature_index",
    "source_system",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
