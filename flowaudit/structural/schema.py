# flowaudit/structural/schema.py

# Top-level shape only. Per-node fields and connection targets are checked
# by the validator itself so that every violation is collected.
WORKFLOW_SHAPE_SCHEMA = {
    "type": "object",
    "required": ["nodes", "connections"],
    "properties": {
        "nodes": {
            "type": "array",
            "items": {
                # id/name/type presence is reported as MissingFieldError later
                "type": "object",
                "properties": {
                    # missing or null parameters count as empty
                    "parameters": {"type": ["object", "null"]},
                },
                "additionalProperties": True
            }
        },

        "connections": {
            "type": "object",

            # Keys: source node references; values: output streams keyed by
            # stream name (usually "main")
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {
                    "type": "array",
                    # one slot per output port
                    "items": {
                        "type": ["array", "null"]
                    }
                }
            }
        }
    },
    "additionalProperties": True
}

REQUIRED_NODE_FIELDS = ("id", "name", "type")
