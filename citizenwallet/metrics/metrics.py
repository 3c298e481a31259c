from prometheus_client import Summary

REQUEST_TIME_pm_ooSponsorUserOperation = Summary(
    "request_processing_seconds_pm_ooSponsorUserOperation",
    "Time spent waiting for paymaster sponsorship",
)
REQUEST_TIME_getUserOpHash = Summary(
    "request_processing_seconds_getUserOpHash",
    "Time spent fetching the entrypoint user operation hash and signing it",
)
REQUEST_TIME_eth_sendUserOperation = Summary(
    "request_processing_seconds_eth_sendUserOperation",
    "Time spent submitting user operations to the bundler",
)
REQUEST_TIME_await_success = Summary(
    "request_processing_seconds_await_success",
    "Time spent waiting for transaction confirmation",
)
