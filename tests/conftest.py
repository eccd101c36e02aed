"""
Pytest configuration and shared fixtures for ftrace timeline tests.
"""
import json
import pytest
from pathlib import Path


UDP_TRACE = """\
# tracer: function_graph
#
# CPU  TASK/PID         DURATION                  FUNCTION CALLS
# |     |    |           |   |                     |   |   |   |
 0)    <idle>-0    |               |  netif_receive_skb_list_internal() {
 0)    <idle>-0    |               |    __netif_receive_skb_list_core() {
 0)    <idle>-0    |               |      ip_list_rcv() {
 0)    <idle>-0    |   0.450 us    |        ip_rcv_core.isra.0();
 0)    <idle>-0    |               |        udp_rcv() {
 0)    <idle>-0    |   1.333 us    |          __udp4_lib_lookup();
 0)    <idle>-0    |   0.750 us    |          sock_queue_rcv_skb();
 0)    <idle>-0    |   3.100 us    |        }
 0)    <idle>-0    |   5.200 us    |      }
 0)    <idle>-0    |   6.000 us    |    }
 0)    <idle>-0    | + 12.345 us   |  }
 ------------------------------------------
 1)    nc-1234     =>   <idle>-0
 ------------------------------------------
 1)    nc-1234     |               |  __sys_sendto() {
 1)    nc-1234     |               |    udp_sendmsg() {
 1)    nc-1234     |   0.300 us    |      ip_make_skb();
 1)    nc-1234     |   2.000 us    |      udp_send_skb();
 1)    nc-1234     |   4.000 us    |    }
 1)    nc-1234     |   5.000 us    |  }
"""

UDP_RCV_LEAF_TRACE = """\
 0)    <idle>-0    |               |  udp_rcv() {
 0)    <idle>-0    |   0.500 us    |    __kfree_skb();
 0)    <idle>-0    |   2.000 us    |  }
"""

# Relative path -> file content. Written under a temporary kernel root.
KERNEL_FILES = {
    'net/ipv4/ip_input.c': """\
// SPDX-License-Identifier: GPL-2.0
#include <net/ip.h>

/*
 * ip_rcv() is the main IPv4 receive function.
 */
static struct sk_buff *ip_rcv_core(struct sk_buff *skb, struct net *net)
{
\tif (!skb)
\t\treturn NULL;
\treturn skb;
}

int ip_rcv(struct sk_buff *skb, struct net_device *dev, struct packet_type *pt,
\t   struct net_device *orig_dev)
{
\tstruct net *net = dev_net(dev);

\tskb = ip_rcv_core(skb, net);
\tif (skb == NULL)
\t\treturn NET_RX_DROP;
\treturn ip_rcv_finish(net, NULL, skb);
}
""",
    'net/ipv4/udp.c': """\
// SPDX-License-Identifier: GPL-2.0
#include <net/udp.h>

/* udp_rcv() { is described here, not defined */
int udp_rcv(struct sk_buff *skb)
{
\treturn __udp4_lib_rcv(skb, dev_net(skb->dev)->ipv4.udp_table, IPPROTO_UDP);
}
EXPORT_SYMBOL(udp_rcv);

/*
 * udp_ghost(skb) {
 *\tnever compiled, see udp_ghost
 */
// udp_ghost(struct sk_buff *skb) {

static int
udp_queue_rcv_skb(struct sock *sk, struct sk_buff *skb)
{
\tconst char *msg = "}";

\tif (!sk) {
\t\tkfree_skb(skb);
\t\treturn -1;
\t}
\treturn 0;
}
""",
    'net/core/dev.c': """\
// SPDX-License-Identifier: GPL-2.0
static int deliver_skb(struct sk_buff *skb)
{
\tint ret = udp_rcv(skb);

\tif (udp_rcv(skb) &&
\t    skb->len) {
\t\tret = 1;
\t}
\tlist_for_each_entry(ptype, &ptype_all, list) {
\t\tret = 2;
\t}
\treturn ret;
}
""",
    'net/core/skbuff.c': """\
// SPDX-License-Identifier: GPL-2.0
void __kfree_skb(struct sk_buff *skb)
{
\tskb_release_all(skb);
\tkfree_skbmem(skb);
}
""",
    'include/net/ip.h': """\
#ifndef _IP_H
#define _IP_H

int ip_rcv(struct sk_buff *skb, struct net_device *dev,
\t   struct packet_type *pt, struct net_device *orig_dev);
static inline bool ip_is_fragment(const struct iphdr *iph)
{
\treturn (iph->frag_off & htons(IP_MF | IP_OFFSET)) != 0;
}
#define ip_rcv_macro(x) { (x) }

#endif
""",
    'include/linux/skbuff.h': """\
#ifndef _LINUX_SKBUFF_H
#define _LINUX_SKBUFF_H

void __kfree_skb(struct sk_buff *skb);
static inline void __kfree_skb(struct sk_buff *skb) { kfree(skb); }

#endif
""",
    'drivers/net/dummy.c': """\
int udp_rcv(struct sk_buff *skb)
{
\treturn 0;
}
""",
}


@pytest.fixture
def udp_trace_text():
    """Two-flow function_graph capture (receive on CPU 0, send on CPU 1)."""
    return UDP_TRACE


@pytest.fixture
def udp_trace_lines():
    """UDP_TRACE split into lines."""
    return UDP_TRACE.splitlines(keepends=True)


@pytest.fixture
def udp_rcv_leaf_lines():
    """udp_rcv entry, one nested __kfree_skb call, closing brace."""
    return UDP_RCV_LEAF_TRACE.splitlines(keepends=True)


@pytest.fixture
def trace_file(tmp_path):
    """UDP_TRACE written to a temporary file."""
    path = tmp_path / "kernel_trace_graph.txt"
    path.write_text(UDP_TRACE)
    return str(path)


@pytest.fixture
def kernel_tree(tmp_path):
    """Small kernel source tree with definitions, prototypes, calls and comments."""
    root = tmp_path / "linux-6.8.y"
    for rel_path, content in KERNEL_FILES.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return str(root)


@pytest.fixture
def line_of():
    """Return the 1-based line number of the first line containing needle."""
    def _line_of(rel_path, needle):
        for number, line in enumerate(KERNEL_FILES[rel_path].splitlines(), 1):
            if needle in line:
                return number
        raise AssertionError(f"{needle!r} not in {rel_path}")
    return _line_of


@pytest.fixture
def temp_json_file(tmp_path):
    """Create a temporary JSON file and return a helper function."""
    def _create_file(data, name=None):
        file_path = tmp_path / (name or f"test_{id(data)}.json")
        with open(file_path, "w") as f:
            json.dump(data, f)
        return str(file_path)

    return _create_file
