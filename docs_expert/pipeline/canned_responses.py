"""
================================================================================
FILE: docs_expert/pipeline/canned_responses.py
================================================================================

PURPOSE:
    Pre-written answers for the handful of Inngest questions that make up a
    large share of real traffic. A match skips embedding, search and
    generation entirely.

TABLE FORMAT:
    CannedRule(key, all_of, response, sources)
    - all_of: groups of substrings; every group needs at least one hit in
      the lower-cased message
    - rules are evaluated in table order and the first match wins, so a
      message mentioning both "retry" and "timeout" gets the retry answer

KEY FACTS:
    - Pure function of the message text, no I/O
    - Only applies to the domain the table was written for
    - Bump CANNED_TABLE_VERSION whenever an answer or predicate changes
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .schemas import CannedResponse

logger = logging.getLogger(__name__)

CANNED_TABLE_VERSION = "2024.1"
CANNED_TABLE_DOMAIN = "inngest"


@dataclass(frozen=True)
class CannedRule:
    key: str
    all_of: Tuple[Tuple[str, ...], ...]
    response: str
    sources: Tuple[str, ...]

    def matches(self, normalized: str) -> bool:
        return all(any(term in normalized for term in group) for group in self.all_of)


def normalize_message(text: str) -> str:
    # Curly apostrophes from mobile keyboards
    return " ".join((text or "").lower().replace("’", "'").replace("‘", "'").split())


# ================================================================================
# SECTION 1: ANSWERS
# ================================================================================

FUNCTION_NOT_TRIGGERING = """Hi there,

When an Inngest function doesn't trigger, the cause is almost always one of these:

**1. The function isn't registered with `serve()`**
Every function must be passed to the `serve` handler, otherwise Inngest never learns it exists:

```typescript
// app/api/inngest/route.ts
import { serve } from "inngest/next";
import { inngest } from "@/inngest/client";
import { helloWorld } from "@/inngest/functions";

export const { GET, POST, PUT } = serve({
  client: inngest,
  functions: [helloWorld], // add every function here
});
```

**2. The event name doesn't match**
The trigger and the sent event must match exactly, including case:

```typescript
inngest.createFunction(
  { id: "hello-world" },
  { event: "test/hello.world" },
  async ({ event, step }) => { /* ... */ }
);

await inngest.send({ name: "test/hello.world", data: {} });
```

**3. The app hasn't been synced**
After deploying, sync the app (or redeploy with the Vercel/Netlify integration) so Inngest picks up new functions. Locally, make sure the Dev Server is running and pointed at your serve endpoint: `npx inngest-cli@latest dev -u http://localhost:3000/api/inngest`.

**4. Keys are missing in production**
`INNGEST_EVENT_KEY` (to send events) and `INNGEST_SIGNING_KEY` (to serve functions) must be set in your deployed environment.

Check the Inngest dashboard's Events tab: if the event arrives but no run starts, it's a registration or name mismatch; if the event never arrives, it's the sending side.

Hope this helps! Let me know if you need clarification on any specific part."""

RETRIES_AND_ERRORS = """Hi there,

Inngest retries failed steps and functions automatically, and you control that behaviour per function.

**Configure the retry count**

```typescript
inngest.createFunction(
  { id: "sync-user", retries: 5 }, // default is 4 retries
  { event: "app/user.created" },
  async ({ event, step }) => {
    await step.run("fetch-profile", async () => {
      // a throw here retries only this step, completed steps are not re-run
      return await fetchProfile(event.data.userId);
    });
  }
);
```

**Stop retrying for permanent errors**
Throw `NonRetriableError` when a retry can never succeed (bad input, deleted record):

```typescript
import { NonRetriableError } from "inngest";

if (!user) {
  throw new NonRetriableError("User no longer exists");
}
```

**Handle final failure**
Use `onFailure` to run cleanup or alerting once all retries are exhausted:

```typescript
inngest.createFunction(
  {
    id: "sync-user",
    onFailure: async ({ error, event }) => {
      await notifyTeam(error.message);
    },
  },
  { event: "app/user.created" },
  handler
);
```

Each `step.run` is retried independently, so wrap separate side effects in separate steps to avoid repeating work that already succeeded.

Hope this helps! Let me know if you need clarification on any specific part."""

STEPS_AND_TIMEOUTS = """Hi there,

Timeouts in Inngest functions usually mean too much work is happening in a single request. The fix is to split the work into steps.

**Why steps help**
Each `step.run` executes as its own HTTP request to your app, and its result is saved by Inngest. A long function becomes a series of short requests, so it no longer has to fit inside your platform's request timeout (for example a serverless function limit).

```typescript
inngest.createFunction(
  { id: "process-import" },
  { event: "app/import.requested" },
  async ({ event, step }) => {
    const rows = await step.run("load-rows", () => loadRows(event.data.fileId));

    for (const batch of chunk(rows, 100)) {
      await step.run(`write-batch-${batch[0].id}`, () => writeBatch(batch));
    }

    await step.sleep("cool-down", "1m");
    await step.run("notify", () => sendReport(event.data.userId));
  }
);
```

**Guidelines**
- Keep each step well under your host's request timeout
- Give every step a unique, stable id
- Return only serializable data from steps; large payloads slow every later step
- Use `step.sleep` / `step.waitForEvent` instead of keeping a request open

For very large fan-outs, send one event per item with `step.sendEvent` and let a second function process each item.

Hope this helps! Let me know if you need clarification on any specific part."""

FLOW_CONTROL = """Hi there,

Inngest has built-in flow control, configured on the function itself.

**Concurrency**: cap how many runs execute at once, optionally per key:

```typescript
inngest.createFunction(
  {
    id: "sync-contacts",
    concurrency: { limit: 5, key: "event.data.accountId" },
  },
  { event: "crm/contacts.sync" },
  handler
);
```

**Throttling**: queue runs so no more than `limit` start per `period`; nothing is dropped:

```typescript
{ id: "call-partner-api", throttle: { limit: 10, period: "1m" } }
```

**Rate limiting**: skip (drop) runs above `limit` per `period`, useful for noisy events:

```typescript
{ id: "send-digest", rateLimit: { limit: 1, period: "4h", key: "event.data.userId" } }
```

**Debounce**: wait for a quiet period and run once with the last event:

```typescript
{ id: "reindex-doc", debounce: { period: "30s", key: "event.data.docId" } }
```

Rule of thumb: use throttle when every event must eventually run, rate limiting when extra events can be discarded, and concurrency to protect a downstream resource such as a database or third-party API.

Hope this helps! Let me know if you need clarification on any specific part."""

LOCAL_DEVELOPMENT = """Hi there,

Local development uses the Inngest Dev Server, which runs entirely on your machine.

**1. Start your app** with the `serve()` endpoint exposed, e.g. `http://localhost:3000/api/inngest`.

**2. Start the Dev Server**

```bash
npx inngest-cli@latest dev
# or point it at your endpoint explicitly
npx inngest-cli@latest dev -u http://localhost:3000/api/inngest
```

**3. Open the UI** at http://localhost:8288 to see registered functions, send test events and inspect every step of every run.

**4. Send events** from your code (no event key needed locally) or from the Dev Server UI:

```typescript
await inngest.send({ name: "test/hello.world", data: { email: "a@b.com" } });
```

If your functions don't show up, check that the Dev Server can reach your app's URL (ports, Docker networking) and that each function is listed in `serve({ functions: [...] })`.

Hope this helps! Let me know if you need clarification on any specific part."""

DEPLOYMENT = """Hi there,

Deploying Inngest functions means deploying your own app (the functions run on your infrastructure) and then syncing it with Inngest.

**1. Set the keys** in your production environment:
- `INNGEST_SIGNING_KEY`: lets Inngest securely call your `serve()` endpoint
- `INNGEST_EVENT_KEY`: lets your app send events

**2. Deploy your app** as usual (Vercel, Netlify, Render, containers...). The `serve()` route must be publicly reachable, e.g. `https://your-app.com/api/inngest`.

**3. Sync the app** so Inngest registers your functions:
- Use the Vercel or Netlify integration to sync automatically on every deploy, or
- Sync manually from the Inngest dashboard by entering your serve URL, or
- Send a PUT request to your serve endpoint after deploying:

```bash
curl -X PUT https://your-app.com/api/inngest
```

**4. Verify** in the dashboard that the app and all functions appear, then send a test event.

Re-sync after every deploy that adds, removes or renames functions, otherwise Inngest keeps using the old definitions.

Hope this helps! Let me know if you need clarification on any specific part."""

# ================================================================================
# SECTION 2: RULE TABLE (order matters, first match wins)
# ================================================================================

CANNED_RULES: Tuple[CannedRule, ...] = (
    CannedRule(
        key="function_not_triggering",
        all_of=(
            ("function", "handler", "event", "workflow"),
            (
                "not trigger", "isn't trigger", "isnt trigger", "doesn't trigger",
                "doesnt trigger", "won't trigger", "wont trigger", "never trigger",
                "not being trigger", "not firing", "isn't firing", "not running",
                "isn't running", "doesn't run", "not invoked", "not being called",
                "not getting called", "not executing", "not showing up", "nothing happens",
            ),
        ),
        response=FUNCTION_NOT_TRIGGERING,
        sources=(
            "https://www.inngest.com/docs/learn/serving-inngest-functions",
            "https://www.inngest.com/docs/events",
        ),
    ),
    CannedRule(
        key="retries_and_error_handling",
        all_of=(
            (
                "retry", "retries", "retrying", "retried", "error handling",
                "handle error", "handling error", "onfailure", "nonretriableerror",
                "non-retriable", "keeps failing",
            ),
            (
                "how", "configure", "set ", "setting", "handle", "fail", "error",
                "stop", "disable", "customize", "change",
            ),
        ),
        response=RETRIES_AND_ERRORS,
        sources=(
            "https://www.inngest.com/docs/guides/error-handling",
            "https://www.inngest.com/docs/features/inngest-functions/error-retries/retries",
        ),
    ),
    CannedRule(
        key="steps_and_timeouts",
        all_of=(
            (
                "timeout", "time out", "timed out", "times out", "timing out",
                "long-running", "long running", "takes too long", "taking too long",
                "max duration",
            ),
        ),
        response=STEPS_AND_TIMEOUTS,
        sources=(
            "https://www.inngest.com/docs/learn/inngest-steps",
            "https://www.inngest.com/docs/reference/functions/step-run",
        ),
    ),
    CannedRule(
        key="flow_control",
        all_of=(
            (
                "rate limit", "rate-limit", "ratelimit", "throttl", "concurrency",
                "concurrent", "debounce", "too many requests",
            ),
        ),
        response=FLOW_CONTROL,
        sources=(
            "https://www.inngest.com/docs/guides/flow-control",
            "https://www.inngest.com/docs/guides/concurrency",
        ),
    ),
    CannedRule(
        key="local_development",
        all_of=(
            (
                "dev server", "local dev", "locally", "localhost", "inngest dev",
                "inngest-cli", "on my machine",
            ),
        ),
        response=LOCAL_DEVELOPMENT,
        sources=(
            "https://www.inngest.com/docs/local-development",
            "https://www.inngest.com/docs/dev-server",
        ),
    ),
    CannedRule(
        key="deployment",
        all_of=(
            (
                "deploy", "vercel", "netlify", "go live", "going live",
                "to production", "signing key", "sync my app", "sync the app",
            ),
        ),
        response=DEPLOYMENT,
        sources=(
            "https://www.inngest.com/docs/deploy",
            "https://www.inngest.com/docs/apps/cloud",
        ),
    ),
)


# ================================================================================
# SECTION 3: MATCHER
# ================================================================================

class CannedResponseMatcher:
    """First-match lookup over an ordered rule table."""

    def __init__(
        self,
        rules: Sequence[CannedRule] = CANNED_RULES,
        domain_id: Optional[str] = CANNED_TABLE_DOMAIN,
    ):
        self.rules: List[CannedRule] = list(rules)
        self.domain_id = domain_id

    def applies_to(self, domain_id: str) -> bool:
        return self.domain_id is None or self.domain_id == domain_id

    def match(self, text: str) -> Optional[CannedResponse]:
        normalized = normalize_message(text)
        if not normalized:
            return None

        for rule in self.rules:
            if rule.matches(normalized):
                logger.info(
                    f"Canned response matched: {rule.key}",
                    extra={"table_version": CANNED_TABLE_VERSION},
                )
                return CannedResponse(
                    key=rule.key,
                    response=rule.response,
                    sources=list(rule.sources),
                )
        return None


_DEFAULT_MATCHER = CannedResponseMatcher()


def match(text: str) -> Optional[CannedResponse]:
    """Match against the default table."""
    return _DEFAULT_MATCHER.match(text)


__all__ = [
    "CANNED_RULES",
    "CANNED_TABLE_VERSION",
    "CannedResponseMatcher",
    "CannedRule",
    "match",
    "normalize_message",
]
