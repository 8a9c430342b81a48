import asyncio

import nats
from nats.errors import TimeoutError

import jsm


async def main():
    nc = await nats.connect("localhost")

    # Consumers on the 'ORDERS' stream.
    mgr = jsm.ConsumerManager(nc, timeout=2)

    # Pull based durable consumer, created unless it exists already.
    puller = await mgr.load_or_new_consumer(
        "ORDERS",
        "orders-worker",
        jsm.durable_name("orders-worker"),
        jsm.ack_wait(10),
        jsm.max_delivery_attempts(5),
    )
    print(puller, puller.next_subject)

    for i in range(0, 10):
        try:
            msg = await puller.next_msg()
            print(msg)
            await msg.respond(b'')
        except TimeoutError:
            print("no messages")
            break

    print(await puller.state())

    # Push based consumer replaying the last hour as it was received,
    # with half of its acknowledgements sampled.
    pusher = await mgr.new_consumer_from_template(
        "ORDERS",
        jsm.SAMPLED_DEFAULT_CONSUMER,
        jsm.durable_name("orders-replay"),
        jsm.delivery_subject("replay.orders"),
        jsm.start_at_time_delta(3600),
        jsm.replay_as_received(),
        jsm.sample_percent(50),
    )
    print("samples on", pusher.sample_subject)

    async def cb(msg):
        print("PUSH:", msg)
        await msg.respond(b'')

    sub = await pusher.subscribe(cb)
    await asyncio.sleep(1)
    await sub.unsubscribe()

    await pusher.delete()
    await nc.close()


if __name__ == '__main__':
    asyncio.run(main())
