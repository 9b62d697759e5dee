"""spanwire Quick Start — minimal example to get spans flowing."""

import spanwire

# 1. Initialize: at most 2 traces per second are sampled
spanwire.init(
    endpoint="localhost:4317",
    service_name="checkout-service",
    environment="development",
    sampler_type="ratelimiting",
    sampler_param=2,
)

# 2. Trace a request
with spanwire.span("handle-checkout", tags={"span.kind": "server"}) as s:
    s.set_tag("cart.items", 3)

    # Child spans inherit the root's sampling decision
    with spanwire.span("reserve-stock") as child:
        child.log(event="stock-reserved", sku="A-100")

    with spanwire.span("charge-card") as child:
        child.set_tag("payment.provider", "acme")

# 3. Shutdown (flushes remaining spans to the collector)
spanwire.shutdown()
