# NSL-KDD column definitions (KDDTrain+.txt / KDDTest+.txt)
COLUMNS = [
    "duration","protocol_type","service","flag","src_bytes","dst_bytes","land",
    "wrong_fragment","urgent","hot","num_failed_logins","logged_in","num_compromised",
    "root_shell","su_attempted","num_root","num_file_creations","num_shells",
    "num_access_files","num_outbound_cmds","is_host_login","is_guest_login","count",
    "srv_count","serror_rate","srv_serror_rate","rerror_rate","srv_rerror_rate",
    "same_srv_rate","diff_srv_rate","srv_diff_host_rate","dst_host_count","dst_host_srv_count",
    "dst_host_same_srv_rate","dst_host_diff_srv_rate","dst_host_same_src_port_rate",
    "dst_host_srv_diff_host_rate","dst_host_serror_rate","dst_host_srv_serror_rate",
    "dst_host_rerror_rate","dst_host_srv_rerror_rate",
]

# "symbolic" in kddcup.names; everything else is "continuous"
NOMINAL = ["protocol_type", "service", "flag", "land", "logged_in", "is_host_login", "is_guest_login"]
NUMERIC = [c for c in COLUMNS if c not in NOMINAL]

LABEL_COL = "label"
DIFFICULTY_COL = "difficulty"

NORMAL = "normal"
LABELS = ("DoS", "Probe", "R2L", "U2R", NORMAL)

# Attack names seen in KDDTrain+ and KDDTest+, grouped by family
DOS_ATTACKS = frozenset([
    "back", "land", "neptune", "pod", "smurf", "teardrop",
    "apache2", "mailbomb", "processtable", "udpstorm", "worm",
])
PROBE_ATTACKS = frozenset([
    "ipsweep", "nmap", "portsweep", "satan", "mscan", "saint",
])
R2L_ATTACKS = frozenset([
    "ftp_write", "guess_passwd", "imap", "multihop", "phf", "spy",
    "warezclient", "warezmaster", "httptunnel", "named", "sendmail",
    "snmpgetattack", "snmpguess", "xlock", "xsnoop",
])
U2R_ATTACKS = frozenset([
    "buffer_overflow", "loadmodule", "perl", "rootkit", "ps", "sqlattack", "xterm",
])

FAMILIES = {
    "DoS": DOS_ATTACKS,
    "Probe": PROBE_ATTACKS,
    "R2L": R2L_ATTACKS,
    "U2R": U2R_ATTACKS,
}
