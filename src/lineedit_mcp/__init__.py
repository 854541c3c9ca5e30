"""Line-oriented streaming text-file editor served over MCP."""
