"""
S3 image labeler package.

Exposes reusable primitives for classifying object keys, decoding and
re-encoding images, stamping the label, and fanning a batch of S3
notification records out to concurrent workers.
"""
