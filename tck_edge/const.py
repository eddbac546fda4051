"""Constants for the Sparkplug TCK edge node driver."""

# Control topics (fixed by the TCK console)
TCK_TOPIC_ROOT = "SPARKPLUG_TCK"
TEST_CONTROL_TOPIC = f"{TCK_TOPIC_ROOT}/TEST_CONTROL"
CONSOLE_PROMPT_TOPIC = f"{TCK_TOPIC_ROOT}/CONSOLE_PROMPT"
CONFIG_TOPIC = f"{TCK_TOPIC_ROOT}/CONFIG"
RESULT_CONFIG_TOPIC = f"{TCK_TOPIC_ROOT}/RESULT_CONFIG"

LOG_TOPIC = f"{TCK_TOPIC_ROOT}/LOG"
RESULT_TOPIC = f"{TCK_TOPIC_ROOT}/RESULT"
CONSOLE_REPLY_TOPIC = f"{TCK_TOPIC_ROOT}/CONSOLE_REPLY"

CONTROL_TOPICS = [
    TEST_CONTROL_TOPIC,
    CONSOLE_PROMPT_TOPIC,
    CONFIG_TOPIC,
    RESULT_CONFIG_TOPIC,
]

# QoS levels
QOS_AT_MOST_ONCE = 0
QOS_AT_LEAST_ONCE = 1

# Control commands
CMD_NEW_TEST = "NEW_TEST"
CMD_END_TEST = "END_TEST"
CFG_UTC_WINDOW = "UTCwindow"
CFG_NEW_RESULT_LOG = "NEW_RESULT-LOG"

# Only the edge role is driven by this node
EDGE_PROFILE = "edge"

# Scenarios
SESSION_ESTABLISHMENT_TEST = "SessionEstablishmentTest"
SESSION_TERMINATION_TEST = "SessionTerminationTest"
SEND_DATA_TEST = "SendDataTest"
SEND_COMPLEX_DATA_TEST = "SendComplexDataTest"
RECEIVE_COMMAND_TEST = "ReceiveCommandTest"
PRIMARY_HOST_TEST = "PrimaryHostTest"
MULTIPLE_BROKER_TEST = "MultipleBrokerTest"

# Verdicts
RESULT_PASS = "OVERALL: PASS"
RESULT_FAIL = "OVERALL: FAIL"
RESULT_NOT_EXECUTED = "OVERALL: NOT EXECUTED"

# Log levels as they appear on the LOG topic
LEVEL_DEBUG = "DEBUG"
LEVEL_INFO = "INFO"
LEVEL_WARN = "WARN"
LEVEL_ERROR = "ERROR"

# Defaults
DEFAULT_BROKER_URL = "tcp://localhost:1883"
DEFAULT_MQTT_PORT = 1883
DEFAULT_CLIENT_ID_PREFIX = "tck_edge_node"
DEFAULT_GROUP_ID = "tck_group"
DEFAULT_EDGE_NODE_ID = "tck_edge"
DEFAULT_UTC_WINDOW_MS = 5000
DEFAULT_KEEPALIVE = 60  # seconds
DEFAULT_DISCONNECT_TIMEOUT = 1.0  # seconds

# Metrics announced in the NBIRTH of a session under test
BIRTH_METRICS = {"TestMetric": 42.0}
