"""ksqltopics - infer the topics ksqlDB test cases need."""

__version__ = "0.1.0"
