SCHEDULE_STAGES = [
    ("load_config", "Load config"),
    ("load_registry", "Load registry"),
    ("build_pipeline", "Build pipeline"),
]

CHECK_STAGES = [
    ("load_config", "Load config"),
    ("load_registry", "Load registry"),
    ("check_order", "Check order"),
]
