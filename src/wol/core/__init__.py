"""Magic packets, wake-up targets, and wakeup files."""
